"""Motion-driven processors, per-stream contexts and ambient generators."""
