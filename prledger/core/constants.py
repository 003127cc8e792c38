"""Application constants."""

# Sets per logged entry (lift log form)
MAX_SETS_PER_LIFT_LOG = 20
