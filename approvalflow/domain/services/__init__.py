"""Domain services

Pure functions over nodes and edges:
- connection_rules: may an edge be drawn
- graph_reachability: checkpoint lookup and BFS helpers
- workflow_validator: errors and warnings for a graph
- copy_paste: clipboard serialization and paste preparation
- history_manager: bounded undo/redo snapshots
- flag_manager: flag validation and factories
- legacy_migration: upgrades nodes stored by older editor versions
"""
