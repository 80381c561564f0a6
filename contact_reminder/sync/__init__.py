"""
contact_reminder.sync - Contact models and the sync layer

Submodules are imported directly (contact_reminder.sync.engine, ...) so the
directory client can depend on the models without loading the engine.
"""
