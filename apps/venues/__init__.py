"""Venues app package.

Events, universities and airports are one ``Venue`` model told apart by
``kind``. Each venue owns a parking grid sized by ``total_parking_slots``
and a live ``available_parking_slots`` counter maintained by the parking
engine.
"""
