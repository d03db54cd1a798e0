"""Named pipelines available to the CLI."""

from swarm.errors import ConfigurationError
from swarm.pipelines import critique, design_review

PIPELINES = {
    "design-review": design_review.build,
    "critique": critique.build,
}


def get_pipeline(name: str):
    """Return the builder for a named pipeline."""
    try:
        return PIPELINES[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown pipeline '{name}'. Must be one of: {sorted(PIPELINES)}"
        ) from None
