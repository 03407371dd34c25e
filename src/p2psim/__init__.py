"""Discrete-event simulation of peer-to-peer gossip and Nakamoto consensus."""
