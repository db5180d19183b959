"""
GlucoBites Report Service

Renders paginated PDF health reports from logged glucose, calorie and sugar
data and delivers them to providers by email or as a download.
"""
__version__ = "0.1.0"
