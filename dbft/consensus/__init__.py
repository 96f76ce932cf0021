"""Concrete dBFT message bodies, payloads, recovery messages, blocks and transactions."""