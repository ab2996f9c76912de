"""Project package for the Quiz Profiler Django deployment."""
