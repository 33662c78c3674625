"""jwsproto tests"""
