"""Position health monitoring."""

from decision_plane.ehm.edge_health_monitor import EdgeHealthMonitor, consecutive_losses, is_dead_edge

__all__ = ["EdgeHealthMonitor", "consecutive_losses", "is_dead_edge"]
