"""HTTP surface for submitting jobs and polling their status."""
