"""Services subpackage."""
