"""Business operations over the polls repository."""
