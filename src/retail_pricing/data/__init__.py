"""Data subpackage - batch pricing of vendor quote sheets."""
