"""
erptui - keyboard-driven terminal front-end for an ERPNext backend.

Architecture:
- model.py / messages.py: immutable application state and the events that move it
- engine.py: pure ``apply(model, message) -> (model, commands)`` state machine
- navigation.py, forms.py: breadcrumb stack and form-input controller
- tasks.py, scheduler.py, dashboard.py: background tasks, their dispatch and the concurrent KPI fan-out
- gateway.py, writers.py, catalog.py: backend access and the document registry
- config.py, log.py: .erp-config loading and the rotating log file
- views/: Textual widgets that render a model snapshot
- app.py: Textual application hosting the message loop

Extensibility points:
1. New document lists: add a DocumentKind to catalog.py
2. New forms: add a FormSpec to catalog.py and a writer to writers.py
3. New backends: implement the DocumentGateway protocol in providers.py
"""

__version__ = "1.7.2"
