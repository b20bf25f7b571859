"""Field-level change logging for tracked entities.

Mutations on tracked models are intercepted through SQLAlchemy ORM events
(:mod:`app.changelog.hooks`), diffed (:mod:`app.changelog.diff`) and written as
``change_logs`` / ``change_log_details`` rows on the flush connection
(:mod:`app.changelog.writer`), so the audit trail commits or rolls back with the
mutation it describes.
"""
