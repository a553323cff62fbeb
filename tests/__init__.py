"""
dripqueue test suite.

- Queue registry tests
- Queue and message selection tests
- Scheduler and poll loop tests
- Observability hook tests
"""
