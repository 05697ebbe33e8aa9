"""Deadline tracker that charges a penalty for every task you let slip."""
