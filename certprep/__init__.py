"""Certification practice server: grading, history, dashboard and goals."""
