# stepflow/services/__init__.py
"""
Form flow services: attribution, contact formatting, payload assembly,
the step controller, flow storage and the consultation client.
"""
