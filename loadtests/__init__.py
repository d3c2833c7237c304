"""
Load-testing package for the seller-profile-improvement-service (Locust-based).

Contains Locust user classes, workflow functions, scenario descriptors and
a threshold gate that together drive synthetic traffic against the service
and its BFF, then decide whether the run passed.

Each profile in :file:`profiles.yml` corresponds to one traffic script:

- ``authenticated_local`` -- full admin workflow, endpoint stress and peak
  load against a locally running stack with the static admin token
- ``qa_static_token`` -- light user workflow against QA with a
  pre-generated JWT
- ``qa_health_check`` -- unauthenticated readiness probe of QA
- ``bff`` -- constant load on the BFF with a static bearer token
- ``bff_production`` -- BFF user workflow with a JWT issued per iteration

Key Concepts Demonstrated:
- Declarative scenario descriptors (ramping VUs, constant VUs, constant
  arrival rate) translated into a Locust ``LoadTestShape``
- Plain, sequential workflow functions that Locust users delegate to
- Named checks and timed groups recorded as Locust request events
- Threshold expressions evaluated at quit time to set the exit code
"""
