"""
Rundown sequencing and timing engine.

Lock Manager, Sequence Store with its page codec, Timing Recalculator,
Reclamation Scheduler, Template Generator and the activity log sink.
"""
