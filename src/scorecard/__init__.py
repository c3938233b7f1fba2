"""Service health scorecard generator."""
