"""Domain packages: one per bounded area of the booking system"""
