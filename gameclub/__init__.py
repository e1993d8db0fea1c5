"""Game Club API: club queues, rotations and the wheel."""
