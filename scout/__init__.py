"""Change-aware exploratory testing agent."""
