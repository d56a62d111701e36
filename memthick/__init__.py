"""
memthick
Calculate a 2D map of membrane thickness from molecular dynamics trajectories
"""

__version__ = '0.1'
