"""Medication & Supplement Interaction Map.

This package lets a user assemble a personal list of drugs, supplements
and foods and view a pairwise interaction matrix, with guidance text and
source links fetched live from public medical APIs (RxNorm, MedlinePlus
Connect, OpenFDA/DailyMed, NCCIH).

The interesting part is the refresh logic in `medmap.coordinator`: every
change to the selection produces a new set of pairs, which are looked up
concurrently and merged into a cache keyed by pair, discarding results
from superseded refresh cycles.
"""
