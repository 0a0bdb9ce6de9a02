"""API subpackage - HTTP access to the pricing engine."""
