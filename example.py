#!/usr/bin/env python3
"""
Example usage of the filesystem codec.

This script writes a small game state as a directory tree, prints the
tree, edits one file the way a shell user would and reads it back.
"""

import asyncio
import tempfile
from pathlib import Path

from fs_codec import FsCodec, shape_from_dict


SHAPE = shape_from_dict({
    "record": {
        "name": "string",
        "level": "u8",
        "position": {"tuple": ["f32", "f32"]},
        "inventory": {"map": "u32"},
        "nickname": {"option": "string"},
        "last_move": {"enum": {
            "Stay": "unit",
            "Move": {"tuple": ["i32", "i32"]},
            "Teleport": {"record": {"x": "i32", "y": "i32"}},
        }},
    }
})


async def main():
    """Main example function."""
    print("Filesystem Codec Example")
    print("=" * 50)

    state = {
        "name": "Alice",
        "level": 7,
        "position": [1.5, -2.25],
        "inventory": {"arrows": 20, "potions": 3},
        "nickname": None,
        "last_move": {"Move": [3, 4]},
    }

    with tempfile.TemporaryDirectory() as temp_dir, FsCodec() as codec:
        root = Path(temp_dir) / "state"

        result = codec.dump(state, SHAPE, root)
        print(f"✅ Wrote {result.file_count} files and {result.directory_count} directories")

        print("\nTree:")
        for path in sorted(root.rglob("*")):
            relative = path.relative_to(root)
            if path.is_file():
                print(f"   {relative} = {path.read_text(encoding='utf-8')!r}")
            else:
                print(f"   {relative}/")

        # Edit one entry by hand, then read everything back
        (root / "level").write_text("8", encoding="utf-8")
        value = await codec.deserialize_async(root, SHAPE)
        print(f"\nRead back level: {value.get('level').value}")
        print(f"Last move: {codec.load(root, SHAPE)['last_move']}")


if __name__ == "__main__":
    asyncio.run(main())
