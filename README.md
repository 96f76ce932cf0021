# dbft

Building blocks for delegated Byzantine Fault Tolerance (dBFT) consensus
nodes. The package covers the anti-MEV extension too. It provides message
bodies and their binary encoding, consensus payloads, recovery messages,
blocks, Merkle trees, P-256 keys and a consensus timer.

## Modules

- `dbft.crypto.hashes`
  - `hash256(data)`: double SHA-256.
  - `hash160(data)`: the first 20 bytes of SHA-256.
  - `to_hex(value)`: lower-case hex.
- `dbft.crypto.ecdsa`: P-256 keys.
  - `generate(reader=None)` and `generate_with(suite, reader=None)` return
    `(ECDSAPrivateKey, ECDSAPublicKey)`. Without a reader they use
    `os.urandom`. A reader is any object with a `read(n)` method.
  - Both return `(None, None)` for an unknown `Suite` or when the reader runs
    out of bytes or fails.
  - `ECDSAPrivateKey.sign(msg)` returns a 64-byte `r || s` signature over the
    SHA-256 of the message.
  - `ECDSAPublicKey.verify(msg, sig)` raises `SignatureError` when the
    signature does not match.
  - `ECDSAPublicKey.to_bytes()` and `ECDSAPublicKey.from_bytes(data)` use the
    33-byte compressed point form. `from_bytes` raises `ValueError` on
    anything else.
- `dbft.merkle`
  - `merkle_tree(*hashes)` builds a `MerkleTree` with `root` and `depth`
    attributes, or returns `None` when no hashes are given.
  - Each node is a `TreeNode` with `is_leaf()` and `is_root()` methods.
- `dbft.timer`: `Timer`, a one-shot timer tagged with a `height` and a
  `view`.
  - `reset(height, view, delay)` restarts it. A zero delay fires at once.
  - `extend(delay)` lengthens the current period. `stop()` cancels it and
    `sleep(delay)` blocks.
  - `poll()` returns the firing time once, or `None`.
  - `wait(timeout=None)` blocks until the timer fires.
  - Delays are seconds or `timedelta` values.
- `dbft.interfaces`
  - The `MessageType` and `ChangeViewReason` enums.
  - Structural protocols: `Transaction`, `PreBlock`, `PreCommitBody`,
    `PrepareRequestBody`, `PrepareResponseBody`, `RecoveryRequestBody`,
    `RecoveryMessageBody`.
- `dbft.consensus.transaction`: `Tx64`, a transaction holding one unsigned
  64-bit value.
- `dbft.consensus.payloads`
  - Frozen message bodies, each with `encode()` and `decode(data)`:
    `ChangeView`, `Commit`, `PrepareRequest`, `PrepareResponse`,
    `RecoveryRequest`, `AMEVCommit`, `PreCommit`.
  - `sec_to_nanosec` and `nanosec_to_sec` convert timestamps. Timestamps
    travel in whole seconds.
- `dbft.consensus.compact`: the compact forms packed into recovery messages:
  `ChangeViewCompact`, `PreCommitCompact`, `CommitCompact`,
  `PreparationCompact`.
- `dbft.consensus.messages`
  - `Payload` carries a message with its sender, height, version and
    previous hash.
  - `Payload.marshal_unsigned()` and `Payload.unmarshal_unsigned(data)`
    round-trip the wire form. `Payload.hash()` returns its double SHA-256.
  - `RecoveryMessage` collects payloads with `add_payload` and gives them
    back with the `get_*` methods.
  - Malformed input raises `DecodeError`, a `ValueError`.
  - Constructors: `new_consensus_payload`, `new_prepare_request`,
    `new_prepare_response`, `new_change_view`, `new_commit`,
    `new_pre_commit`, `new_amev_commit`, `new_recovery_request`,
    `new_recovery_message`.
- `dbft.consensus.block`
  - `BlockBase` holds the signed fields.
  - `NeoBlock` has `hash_data`, `sign`, `verify` and `hash`.
  - `PreBlock` is the anti-MEV draft.
  - `AMEVBlock` is the final anti-MEV block.
  - Built with `new_block`, `new_pre_block` and `new_amev_block`.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Example

```python
from dbft.consensus.block import new_block
from dbft.consensus.messages import (
    Payload,
    new_consensus_payload,
    new_prepare_request,
)
from dbft.consensus.transaction import Tx64
from dbft.crypto.ecdsa import generate
from dbft.interfaces import MessageType

priv, pub = generate()

txs = [Tx64(1), Tx64(2)]
hashes = [tx.hash() for tx in txs]

block = new_block(1_700_000_000 * 10**9, 1, bytes(32), 42, hashes)
block.transactions = txs
block.sign(priv)
block.verify(pub, block.signature)  # raises SignatureError if bad

request = new_prepare_request(1_700_000_000 * 10**9, 42, hashes)
payload = new_consensus_payload(MessageType.PREPARE_REQUEST, 1, 0, 0, request)
data = payload.marshal_unsigned()
assert Payload.unmarshal_unsigned(data).hash() == payload.hash()
```

## What this package does not do

- It has no consensus state machine. Nothing here drives a node through
  views, counts responses, commits blocks or reacts to timeouts; the timer
  only reports when it fires.
- It has no networking, no transaction pool, no block storage and no
  command-line program.
- The wire form of a `RecoveryMessage` does not carry its PreCommit entries.
- `Payload.decode` rejects payloads of type `PRE_COMMIT` with a
  `DecodeError`.