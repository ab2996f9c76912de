"""Management package for custom Django admin commands.

This package exposes ``manage.py`` commands for seeding the SCARF template
quiz and for reporting authoring issues across stored quizzes.
"""
