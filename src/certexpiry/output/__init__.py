"""Output for the host monitoring system."""

from certexpiry.output.munin import clean_fieldname, render_config, render_values
from certexpiry.output.snapshot import SnapshotCache

__all__ = ["SnapshotCache", "clean_fieldname", "render_config", "render_values"]
