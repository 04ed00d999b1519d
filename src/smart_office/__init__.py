"""Smart office engine.

Feature modules (verification, attendance, wfh, booking, release, ...) with
a thin Flask controller layer over service/repository layers.
"""
