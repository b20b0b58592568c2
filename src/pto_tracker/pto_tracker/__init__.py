"""PTO tracker package.

Feature modules (attendance, pto, notifications, realtime, ...) sit on top of a
document-style record store. Flask controllers are a thin layer; the workflow
rules live in the services.
"""
