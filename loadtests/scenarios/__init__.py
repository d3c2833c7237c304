"""
Locust scenario user classes.

Each module groups the ``HttpUser`` subclasses of one load-test script:

- :mod:`.authenticated_local` -- full admin workflow, endpoint stress and
  peak load against the local stack
- :mod:`.qa_static_token` -- QA user workflow with a pre-generated token
- :mod:`.qa_health_check` -- unauthenticated QA readiness probe
- :mod:`.bff` -- static-token and issued-JWT BFF traffic

All concrete users inherit from the abstract classes in :mod:`.base` and
delegate their single task to a function in :mod:`loadtests.workflows`.
"""
