"""Services Layer — resolver chain, controller invocation, dispatcher and response writer.

Invariants:
    - Every dispatch-path function receives the RequestContext explicitly
    - Providers are consulted in the order they were configured

Design Decisions:
    - One module per dispatch stage for locality (ADR: no god objects)
"""
