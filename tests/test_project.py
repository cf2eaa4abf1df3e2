"""
Unit tests for the TileScript project API.

Tests for location tables, script parsing across a map and end-to-end
compilation.
"""

import unittest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import tilescript as ts
from tilescript import (
    BuildConfig, Project, ScriptEntry, LocationEntry,
    build_location_table, parse_scripts, compile_scripts,
)
from tilescript.errors import (
    ChunkOverflowError, CompileError, LexError, LocationResolutionError, ParseError,
)


MAP_SCRIPTS = [
    ScriptEntry(10, 16, 16, "msg {welcome} setflag flag_visited;"),
    ScriptEntry(11, 200, 40, "if flag_visited then tmsg @shop {again} else msg {first} endif;"),
    ScriptEntry(12, 4000, 900, "tp @spawn @shop readflag flag_key;"),
    ScriptEntry(13, 32, 16, "if !flag_key then msg {locked} endif msg {welcome};"),
    ScriptEntry(14, 1000, 3000, ";"),
    ScriptEntry(15, 4000, 900, "unsetflag flag_visited tmsg 1 2 {bye};"),
]

MAP_LOCATIONS = {"spawn": (2, 3), "shop": (10, 5)}


class TestLocationTable(unittest.TestCase):
    """Test build_location_table()."""

    def test_pixels_to_tiles(self):
        table = build_location_table([
            LocationEntry(1, "spawn", 32.0, 48.0),
            LocationEntry(2, "shop", 160.0, 80.0),
        ])
        self.assertEqual(table, {"spawn": (2, 3), "shop": (10, 5)})

    def test_fractional_coordinates_truncate(self):
        table = build_location_table([LocationEntry(1, "test", 33.7, 47.9)])
        self.assertEqual(table["test"], (2, 2))

    def test_leading_at_is_stripped(self):
        table = build_location_table([LocationEntry(1, "@door", 0, 16)])
        self.assertEqual(table, {"door": (0, 1)})

    def test_empty(self):
        self.assertEqual(build_location_table([]), {})

    def test_out_of_range_pixels_saturate(self):
        table = build_location_table([
            LocationEntry(1, "edge", -4.0, 8.0),
            LocationEntry(2, "far", 65536 * 16 + 5, 70000 * 16),
        ])
        self.assertEqual(table, {"edge": (0, 0), "far": (65535, 65535)})

    def test_custom_tile_size(self):
        table = build_location_table([LocationEntry(1, "a", 64, 64)], tile_size=32)
        self.assertEqual(table["a"], (2, 2))


class TestParseScripts(unittest.TestCase):
    """Test parse_scripts()."""

    def test_tile_positions(self):
        scripts, _ = parse_scripts([ScriptEntry(1, 8 * 16, 4 * 16 + 15, "msg {a};")])
        self.assertEqual((scripts[0].tile_x, scripts[0].tile_y), (8, 4))
        self.assertEqual(scripts[0].script_id, 1)
        self.assertEqual(scripts[0].source, "msg {a};")

    def test_symbols_shared_across_scripts(self):
        scripts, symbols = parse_scripts([
            ScriptEntry(1, 0, 0, "msg {a} msg {b};"),
            ScriptEntry(2, 0, 0, "msg {b} msg {c};"),
        ])
        self.assertEqual(symbols.texts.as_dict(), {"a": 0, "b": 1, "c": 2})
        self.assertEqual([cmd.text.index for cmd in scripts[1].body], [1, 2])

    def test_collects_flags_without_tags(self):
        _, symbols = parse_scripts(
            [ScriptEntry(0, 0, 0, "if flag_A then setflag flag_B else unsetflag flag_C endif;")]
        )
        self.assertEqual(len(symbols.tags), 0)
        self.assertEqual(len(symbols.flags), 3)

    def test_error_names_script(self):
        with self.assertRaises(ParseError) as ctx:
            parse_scripts([
                ScriptEntry(1, 0, 0, "msg {ok};"),
                ScriptEntry(42, 0, 0, "warp 1 1;"),
            ])
        self.assertEqual(ctx.exception.script_id, 42)
        self.assertIn("warp", str(ctx.exception))

    def test_missing_location(self):
        with self.assertRaises(LocationResolutionError) as ctx:
            parse_scripts([ScriptEntry(3, 0, 0, "tp @nowhere 0 0;")], {})
        self.assertEqual(ctx.exception.tag, "nowhere")
        self.assertEqual(ctx.exception.script_id, 3)

    def test_parallel_matches_sequential(self):
        sequential, seq_symbols = parse_scripts(MAP_SCRIPTS, MAP_LOCATIONS)
        parallel, par_symbols = parse_scripts(
            MAP_SCRIPTS, MAP_LOCATIONS, BuildConfig(workers=4)
        )
        self.assertEqual(parallel, sequential)
        self.assertEqual(par_symbols, seq_symbols)
        self.assertEqual(par_symbols.texts.as_dict(), seq_symbols.texts.as_dict())

    def test_parallel_reports_first_failing_script(self):
        entries = [
            ScriptEntry(1, 0, 0, "msg {a};"),
            ScriptEntry(2, 0, 0, "msg {b}"),
            ScriptEntry(3, 0, 0, "bogus;"),
        ]
        with self.assertRaises(LexError) as ctx:
            parse_scripts(entries, config=BuildConfig(workers=3))
        self.assertEqual(ctx.exception.script_id, 2)


class TestCompile(unittest.TestCase):
    """End-to-end compilation tests."""

    def test_two_scripts_same_chunk(self):
        output = compile_scripts([
            ScriptEntry(1, 1 * 16, 1 * 16, "msg {a};"),
            ScriptEntry(2, 2 * 16, 1 * 16, "msg {b};"),
        ])
        self.assertEqual(output.offsets, [0, 4])
        self.assertEqual(list(output.chunks[0]), [0, 0, 0, 0, 0, 1, 0, 0])
        self.assertEqual(len(output.chunks), 2048)

    def test_chunk_overflow(self):
        entries = [ScriptEntry(i, 0, 0, "msg {x};") for i in range(129)]
        with self.assertRaises(ChunkOverflowError) as ctx:
            compile_scripts(entries, config=BuildConfig(max_chunk_size=128))
        self.assertEqual(ctx.exception.chunk_index, 0)
        self.assertEqual(ctx.exception.size, 516)
        self.assertIn("chunk 0", str(ctx.exception))
        self.assertIn("516", str(ctx.exception))

    def test_larger_bank(self):
        entries = [ScriptEntry(i, 0, 0, "msg {x};") for i in range(129)]
        output = compile_scripts(entries, config=BuildConfig(max_chunk_size=1024))
        self.assertEqual(len(output.chunks[0]), 516)
        self.assertEqual(output.offsets[:3], [0, 4, 8])
        self.assertEqual(output.offsets[-1], 512)

    def test_deterministic(self):
        first = compile_scripts(MAP_SCRIPTS, MAP_LOCATIONS)
        second = compile_scripts(MAP_SCRIPTS, MAP_LOCATIONS)
        self.assertEqual(first.chunks, second.chunks)
        self.assertEqual(first.offsets, second.offsets)
        self.assertEqual(first.symbols, second.symbols)

    def test_empty_map_keeps_full_grid(self):
        output = compile_scripts([])
        self.assertEqual(len(output.chunks), 2048)
        self.assertEqual(output.offsets, [])
        self.assertEqual(output.blob(), b"")

    def test_script_outside_world(self):
        with self.assertRaises(CompileError) as ctx:
            compile_scripts([ScriptEntry(5, 256 * 16, 0, "msg {far};")])
        self.assertEqual(ctx.exception.script_id, 5)

    def test_negative_location_compiles(self):
        project = Project()
        project.add_locations([LocationEntry(1, "edge", -4.0, 8.0)])
        output = project.compile([ScriptEntry(1, 0, 0, "tp @edge 0 0;")])
        self.assertEqual(list(output.chunks[0]), [2, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0])

    def test_invalid_location_table_entry(self):
        with self.assertRaises(ParseError) as ctx:
            compile_scripts([ScriptEntry(4, 0, 0, "tp @edge 0 0;")], {"edge": (-1, 0)})
        self.assertEqual(ctx.exception.script_id, 4)
        self.assertIn("edge", str(ctx.exception))

    def test_deeply_nested_script(self):
        source = "if flag_a then " * 2000 + "msg {x};"
        with self.assertRaises(CompileError) as ctx:
            compile_scripts([ScriptEntry(8, 0, 0, source)],
                            config=BuildConfig(max_chunk_size=512))
        self.assertEqual(ctx.exception.script_id, 8)
        self.assertIn("nested too deeply", str(ctx.exception))

    def test_tags_are_inlined(self):
        output = compile_scripts([ScriptEntry(1, 0, 0, "tp @spawn 0 0;")], MAP_LOCATIONS)
        self.assertEqual(list(output.chunks[0]), [2, 0, 2, 0, 3, 0, 0, 0, 0, 0, 0, 0])
        self.assertEqual(output.symbols.tags.as_dict(), {"spawn": 0})

    def test_named_locations(self):
        config = BuildConfig(named_locations=True)
        output = compile_scripts(
            [ScriptEntry(1, 0, 0, "tp @spawn @shop;")], MAP_LOCATIONS, config
        )
        self.assertEqual(list(output.chunks[0]), [2, 1, 0, 0, 1, 1, 0, 0])


class TestProject(unittest.TestCase):
    """Test the Project wrapper."""

    def test_compile_with_location_entries(self):
        project = Project()
        project.add_locations([LocationEntry(1, "@door", 48, 64)])
        output = project.compile([ScriptEntry(1, 0, 0, "tmsg @door {knock};")])
        self.assertEqual(project.locations, {"door": (3, 4)})
        self.assertEqual(list(output.chunks[0]), [1, 0, 3, 0, 4, 0, 0, 0, 0])

    def test_compile_source(self):
        project = Project(locations={"loc1": (1, 1)})
        output = project.compile_source("tp @loc1 5 6;", x=8 * 16, y=0)
        self.assertEqual(output.chunk_offsets[1], [0])
        self.assertEqual(output.chunks[0], b"")

    def test_module_compile_source(self):
        output = ts.compile_source("msg {hello world};")
        self.assertEqual(output.chunks[0], bytes([0, 0, 0, 0]))
        self.assertEqual(output.symbols.texts.as_dict(), {"hello world": 0})


if __name__ == '__main__':
    unittest.main()
