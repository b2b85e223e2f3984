"""School administration package.

Organized by feature modules (students, fees, users) with a thin Flask
controller layer on top of service/repository layers.
"""
