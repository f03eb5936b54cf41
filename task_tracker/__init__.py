"""Single-list desktop task tracker."""
