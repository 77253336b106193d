"""
Route catalog value types.

Routes, stops and items are immutable snapshots; the tracker replaces a
route wholesale when its run counter changes or it is re-authored.
"""
