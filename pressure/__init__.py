"""Pressure: a tile-rotation pipe puzzle engine with closing walls."""
