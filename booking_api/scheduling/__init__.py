"""Scheduling core: time ranges, participant lists, conflicts and lifecycles."""
