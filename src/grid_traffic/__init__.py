"""
Simulación de tráfico urbano basada en agentes sobre una rejilla.
"""

__version__ = "0.1.0"
