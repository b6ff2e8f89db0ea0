"""
Services coordinating guildwarden's decision procedures.

- **message_processing_service.py**: ``MessageProcessingService`` runs the
  middleware chain, the spam detector and command dispatch for one message
  and returns a ``DispatchResult``.
"""
