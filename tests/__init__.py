"""
Ticket Desk tests.

unit/test_engine    lifecycle rules, history diffing, bucketing, aggregation
unit/test_services  services against an in-memory MongoDB (mongomock)
unit/test_utils     tokens, tenant subdomains
integration/        HTTP round trips through the FastAPI app

    pytest                      # everything
    pytest tests/unit -q
"""
