"""Behaviour-driven API test harness for the JSONPlaceholder REST service."""
