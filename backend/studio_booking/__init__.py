"""Studio booking engine: capacity, cancellation deadlines, packages and reminders."""
