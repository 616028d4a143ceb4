# wickdb

wickdb provides two building blocks of an LSM-tree key-value store, written in pure Python with no dependencies outside the standard library.

- `wickdb.batch` provides `WriteBatch`, which collects puts and deletes so they can be applied in order as one unit. It also provides the `ValueType` enum (`DELETION`, `VALUE`) and the `CorruptionError` exception.
- `wickdb.cache` provides `LRUCache`, a thread-safe least-recently-used cache in which each entry is weighted by a charge. It also provides `ShardedCache`, which spreads keys over several caches, and the abstract `Cache` interface that both implement.

## Installation

```
pip install .
```

To install the test dependencies as well:

```
pip install ".[test]"
```

## Write batches

```python
from wickdb.batch import WriteBatch, CorruptionError

batch = WriteBatch()
batch.put(b"foo", b"bar")
batch.delete(b"box")
batch.count                     # 2
batch.sequence = 100            # sequence number of the first record
batch.approximate_size()        # size of the encoded contents in bytes

other = WriteBatch()
other.put(b"baz", b"boo")
batch.append(other)             # batch now holds 3 records
```

Encoded layout:

- The contents begin with a 12-byte header: an 8-byte little-endian starting sequence number, then a 4-byte little-endian record count.
- The records follow the header.
- Each record is a one-byte type tag followed by a varint-prefixed key.
- A put record also carries a varint-prefixed value after the key.

`data()` returns the encoded bytes and `set_contents(contents)` replaces them. The batch also offers these operations:

- `clear()` resets the batch to an empty header.
- `is_empty()` and `len(batch)` report the record count.
- `copy()` returns an independent copy.

`append(src)` raises `ValueError` if `src` is shorter than the header.

`insert_into(mem)` replays the records against any object that has an `add(seq, value_type, key, value)` method. Records are numbered upwards from the batch's sequence number. Deletions are added with an empty value.

`insert_into` raises `CorruptionError` in these cases:

- the contents are shorter than the header;
- a record is truncated;
- a type tag is unknown;
- the number of records decoded differs from the count in the header.

Any records decoded before the error have already been added to `mem`.

## Caches

```python
from wickdb.cache import LRUCache, ShardedCache

evicted = []
cache = LRUCache(100, lambda k, v: evicted.append((k, v)))
cache.insert(1, "one", 1)    # returns None: the key is new
cache.get(1)                 # "one"
cache.insert(1, "uno", 1)    # returns "one" and reports (1, "one") to the hook
cache.erase(1)               # reports (1, "uno") to the hook
cache.total_charge()         # 0
len(cache)                   # 0

sharded = ShardedCache([LRUCache(1 << 20, None) for _ in range(8)])
sharded.insert("key", "value", 3)
sharded.get("key")           # "value"
sharded.total_charge()       # 3
```

### LRUCache behaviour

- **Replacing a key.** Inserting a key that is already cached replaces its value, marks it as most recently used, and returns the old value. The entry's charge is not changed.
- **Inserting a new key.** If the total charge has already reached the capacity, the least recently used entry is evicted first. Only one entry is evicted per insert, so the total charge can exceed the capacity for a while.
- **Zero capacity.** A cache with capacity 0 stores nothing.
- **Negative capacity.** A negative capacity raises `ValueError`.
- **The evict hook.** If given, the hook is called with `(key, value)` for every value that leaves the cache, whether it was evicted, erased or replaced. The hook runs outside the cache's lock.

### ShardedCache behaviour

`ShardedCache` picks a shard from `hash(key)` and forwards each call to that shard. Its `total_charge()` is the sum over all shards. Creating it with no shards raises `ValueError`.

## What this package does not do

This package is not a working key-value store. It does not include:

- a memtable;
- on-disk tables or a write-ahead log;
- compaction;
- a database object to open, read from or write to.

`WriteBatch.insert_into` needs a memtable-like object that you supply. The caches are general-purpose and are not connected to any storage.

## Running the tests

```
pytest
```