"""Pure domain logic: clock arithmetic, recurrence rules, repository contracts."""
