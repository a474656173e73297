"""Studio booking API"""
