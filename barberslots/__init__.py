"""
barberslots - availability and slot scheduling for barbershop bookings.
"""

__version__ = "0.1.0"
