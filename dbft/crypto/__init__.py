"""Hash functions and P-256 ECDSA keys used by dBFT."""