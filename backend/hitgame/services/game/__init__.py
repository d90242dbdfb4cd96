"""Game domain services: the multiplier table and the match engine.

Pure(ish) logic kept apart from HTTP and Socket.IO transport so routes stay
thin and the state machine can be exercised directly in tests.
"""
