"""Post-processing passes over the aggregated tree."""
