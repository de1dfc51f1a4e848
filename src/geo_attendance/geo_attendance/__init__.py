"""Geo-fenced, biometric-gated attendance package.

Organized by feature modules (geofence, biometrics, attendance, reports, ...)
with a thin Flask controller layer over service/repository layers.
"""
