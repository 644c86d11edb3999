"""Tests for the Yeelight HomeKit bridge."""
