"""Delivery planner.

``projector`` computes which recipient-months are due for a delivery,
``creation`` turns selected due rows into delivery records and
``service`` loads planner inputs from the database.
"""
