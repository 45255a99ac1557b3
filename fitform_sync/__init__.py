"""
FitForm Sync Client
===================

Client-side session and telemetry sync for the FitForm AR fitness app.

Modules:
    - transport: UDP telemetry channel and HTTP control client
    - sync: Session state and the sync coordinator
    - utils: Joint frame encoding and logging helpers
"""

__version__ = "1.0.0"
__author__ = "FitForm Team"
