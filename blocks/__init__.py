"""
blocks — the generic "block id + operation" integration layer.

A block is a named integration target (Airtable table, spreadsheet,
mailbox) with a fixed set of operations.  Blocks are declared in
``blocks/*_blocks.py``, collected by ``BlockRegistry`` at startup and
executed through ``BlockDispatcher``.
"""
