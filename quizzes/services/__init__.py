"""Branching, scoring and persistence helpers for quizzes."""
