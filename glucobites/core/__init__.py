"""
Core report pipeline: formatting, layout, composition, delivery and scheduling.
"""
