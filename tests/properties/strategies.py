"""Hypothesis strategies for generating telemetry domain objects."""

from hypothesis import strategies as st

from telemetry_core.models import EventRecord

from ..factories import make_snapshot, make_summary, pipeline_metrics

statuses = st.sampled_from(["start", "success", "error"])
providers = st.sampled_from(["openai", "fal", "replicate", None])
pipelines = st.sampled_from(["ingest", "render", "frontend.tab.switch", None])
durations = st.one_of(
    st.none(), st.floats(min_value=0, max_value=600_000, allow_nan=False, allow_infinity=False)
)
rates = st.floats(min_value=0, max_value=1, allow_nan=False)


@st.composite
def event_records(draw):
    provider = draw(providers)
    return EventRecord(
        status=draw(statuses),
        pipeline=draw(pipelines),
        duration_ms=draw(durations),
        metadata={"provider": provider} if provider is not None else {},
    )


event_lists = st.lists(event_records(), max_size=60)


@st.composite
def low_sample_snapshots(draw, min_samples=5):
    """Snapshots where every pipeline is below ``min_samples`` on at least one side."""
    names = draw(st.lists(st.sampled_from(["ingest", "render", "upload"]), unique=True))
    current = {}
    previous = {}
    for name in names:
        small = draw(st.integers(min_value=0, max_value=min_samples - 1))
        other = draw(st.integers(min_value=0, max_value=50))
        current_attempts, previous_attempts = draw(
            st.sampled_from([(small, other), (other, small)])
        )
        current[name] = pipeline_metrics(
            current_attempts, success_rate=draw(rates), p95_ms=draw(st.floats(0, 1e6))
        )
        previous[name] = pipeline_metrics(
            previous_attempts, success_rate=draw(rates), p95_ms=draw(st.floats(0, 1e6))
        )
    return make_snapshot(make_summary(pipelines=current), make_summary(pipelines=previous))


@st.composite
def trend_snapshots(draw):
    def summary():
        provider_names = draw(st.lists(st.sampled_from(["openai", "fal"]), unique=True))
        return make_summary(
            window_events=draw(st.integers(min_value=0, max_value=50)),
            success_rate=draw(rates),
            p95_ms=draw(st.floats(min_value=0, max_value=1e6)),
            provider_fail_rate={name: draw(rates) for name in provider_names},
        )

    return make_snapshot(summary(), summary())
