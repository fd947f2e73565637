"""
ControlPulse API Routes Package
"""
