"""
Option resolver tests.

Scope
- Option spelling: short clusters, attached/following values, long names with
  '=' or a following value, single-dash long names, unique prefixes.
- Per-option behavior: toggles, numeric ranges, composite values, paths,
  automatic paths, palette specs, verbosity, version.
- Diagnostics: recoverable faults keep scanning, fatal faults raise, warnings
  for deprecated spellings and overridden paths.

Conventions
- Test method names follow CamelCase per project convention.
- Warnings are recorded with warnings.catch_warnings; assertions use the
  structured faults kept by Diagnostics.
"""
import unittest
import warnings
from pathlib import Path
from unittest import TestCase

from tilegfx.config import Builder, InputSlice, PalSpecType, Verbosity
from tilegfx.faults import (
    AmbiguousOptionError,
    DeprecatedOptionWarning,
    Diagnostics,
    DuplicateInputError,
    EmptyInputError,
    EmptyPathError,
    FaultCode,
    MalformedListError,
    MalformedSliceError,
    MissingArgumentError,
    OverridingPathWarning,
    TrailingCharactersError,
    UnexpectedArgumentError,
    UnknownOptionError,
    ValueRangeError,
)
from tilegfx.frames import ArgumentSourceStack
from tilegfx.palette import Rgba
from tilegfx.resolver import OptionResolver, VersionRequest


class ResolverTestCase(TestCase):
    def resolve(self, *argv):
        self.builder = Builder()
        self.diagnostics = Diagnostics()
        with warnings.catch_warnings(record=True):
            warnings.simplefilter("always")
            ArgumentSourceStack(argv, self.diagnostics).drain(OptionResolver(self.builder, self.diagnostics))
        return self.builder

    def assertFaults(self, *types):
        self.assertEqual([type(fault) for fault in self.diagnostics.faults], list(types))


class TestSpelling(ResolverTestCase):
    def testShortWithFollowingValue(self):
        self.assertEqual(self.resolve("-o", "out.2bpp").output, Path("out.2bpp"))

    def testShortWithAttachedValue(self):
        self.assertEqual(self.resolve("-oout.2bpp").output, Path("out.2bpp"))

    def testShortCluster(self):
        builder = self.resolve("-CZu")
        self.assertTrue(builder.use_color_curve)
        self.assertTrue(builder.column_major)
        self.assertTrue(builder.allow_dedup)

    def testClusterEndingWithValue(self):
        builder = self.resolve("-ud1")
        self.assertTrue(builder.allow_dedup)
        self.assertEqual(builder.bit_depth, 1)

    def testLongWithEquals(self):
        self.assertEqual(self.resolve("--tilemap=map.bin").tilemap, Path("map.bin"))

    def testLongWithFollowingValue(self):
        self.assertEqual(self.resolve("--tilemap", "map.bin").tilemap, Path("map.bin"))

    def testSingleDashLongName(self):
        builder = self.resolve("-tilemap=map.bin", "-unique-tiles")
        self.assertEqual(builder.tilemap, Path("map.bin"))
        self.assertTrue(builder.allow_dedup)

    def testUniquePrefix(self):
        self.assertTrue(self.resolve("--mirr").allow_mirroring)

    def testAmbiguousPrefixIsFatal(self):
        with self.assertRaises(AmbiguousOptionError) as context:
            self.resolve("--outp")
        self.assertEqual(context.exception.code, FaultCode.AMBIGUOUS_OPTION)
        self.assertTrue(context.exception.options["usage"])

    def testExactNameBeatsLongerNames(self):
        builder = self.resolve("--output-palette")
        self.assertTrue(builder.deferred.auto_palettes)
        self.assertFalse(builder.deferred.auto_palmap)

    def testUnknownLongOptionIsFatal(self):
        with self.assertRaises(UnknownOptionError) as context:
            self.resolve("--bogus")
        self.assertEqual(context.exception.location, "command line, first argument")

    def testUnknownShortOptionIsFatal(self):
        with self.assertRaises(UnknownOptionError) as context:
            self.resolve("img.png", "-mk")
        self.assertEqual(context.exception.message, "unknown option 'k'")
        self.assertEqual(context.exception.location, "command line, second argument")

    def testMissingValueIsFatal(self):
        with self.assertRaises(MissingArgumentError):
            self.resolve("--depth")
        with self.assertRaises(MissingArgumentError):
            self.resolve("img.png", "-o")

    def testValueForToggleIsFatal(self):
        with self.assertRaises(UnexpectedArgumentError):
            self.resolve("--mirror-tiles=yes")

    def testVersionStopsScanning(self):
        with self.assertRaises(VersionRequest):
            self.resolve("-V", "--bogus")
        with self.assertRaises(VersionRequest):
            self.resolve("--version")


class TestInputs(ResolverTestCase):
    def testFirstPositionalIsInput(self):
        self.assertEqual(self.resolve("-u", "img.png").input, Path("img.png"))

    def testLoneDashIsPositional(self):
        self.assertEqual(self.resolve("-").input, Path("-"))

    def testDoubleDashEndsOptions(self):
        builder = self.resolve("-u", "--", "-o")
        self.assertEqual(builder.input, Path("-o"))
        self.assertIsNone(builder.output)

    def testDuplicateInputIsFatal(self):
        with self.assertRaises(DuplicateInputError) as context:
            self.resolve("a.png", "b.png")
        self.assertEqual(context.exception.message, 'input image specified more than once! (first "a.png", then "b.png")')
        self.assertTrue(context.exception.options["usage"])

    def testEmptyInputIsFatal(self):
        with self.assertRaises(EmptyInputError):
            self.resolve("")


class TestNumbers(ResolverTestCase):
    def testDefaults(self):
        builder = self.resolve()
        self.assertEqual(builder.bit_depth, 2)
        self.assertEqual(builder.nb_palettes, 8)
        self.assertEqual(builder.nb_colors_per_pal, 0)
        self.assertEqual(builder.max_nb_tiles, [0xFFFF, 0])
        self.assertEqual(builder.base_tile_ids, [0, 0])

    def testDepth(self):
        self.assertEqual(self.resolve("-d", "1").bit_depth, 1)
        self.assertFaults()

    def testDepthOutOfRangeFallsBack(self):
        builder = self.resolve("-d", "3")
        self.assertEqual(builder.bit_depth, 2)
        self.assertFaults(ValueRangeError)
        self.assertEqual(self.diagnostics.faults[0].message, "Bit depth must be 1 or 2, not 3")

    def testDepthTrailingCharacters(self):
        self.resolve("-d", "1x")
        self.assertFaults(TrailingCharactersError)
        self.assertIn('"1x"', self.diagnostics.faults[0].message)

    def testDepthTrailingCharactersFallsBack(self):
        builder = self.resolve("-d", "3x")
        self.assertEqual(builder.bit_depth, 2)
        self.assertFaults(TrailingCharactersError)
        self.assertEqual(self.resolve("-d", "60000x").bit_depth, 2)

    def testPaletteCount(self):
        self.assertEqual(self.resolve("-n", "$10").nb_palettes, 16)
        self.resolve("-n", "0")
        self.assertFaults(ValueRangeError)
        self.resolve("-n", "257")
        self.assertFaults(ValueRangeError)

    def testPaletteSize(self):
        self.assertEqual(self.resolve("-s", "2").nb_colors_per_pal, 2)
        self.resolve("--palette-size=5")
        self.assertFaults(ValueRangeError)

    def testReverseStride(self):
        self.assertEqual(self.resolve("-r", "20").reversed_width, 20)
        self.resolve("-r", "0")
        self.assertFaults(ValueRangeError)

    def testTrim(self):
        self.assertEqual(self.resolve("-x", "3").trim, 3)

    def testScanningContinuesAfterErrors(self):
        builder = self.resolve("-d", "9", "-n", "0", "-s", "2", "img.png")
        self.assertEqual(self.diagnostics.errors, 2)
        self.assertEqual(builder.nb_colors_per_pal, 2)
        self.assertEqual(builder.input, Path("img.png"))

    def testFaultLocation(self):
        self.resolve("img.png", "-d", "3")
        self.assertEqual(self.diagnostics.faults[0].location, "command line, second argument")


class TestComposites(ResolverTestCase):
    def testSlice(self):
        self.assertEqual(self.resolve("-L", "5,10:20,30").input_slice, InputSlice(5, 10, 20, 30))
        self.assertFaults()

    def testSliceWithBlanks(self):
        self.assertEqual(self.resolve("--slice", "1 , 2 : 3 , 4").input_slice, InputSlice(1, 2, 3, 4))
        self.assertFaults()

    def testSliceWrongSeparator(self):
        self.resolve("-L", "5:10,20,30")
        self.assertFaults(MalformedSliceError)
        self.assertEqual(self.diagnostics.faults[0].message, 'Missing comma after left coordinate in "5:10,20,30"')

    def testSliceZeroWidth(self):
        builder = self.resolve("-L0,0:0,8")
        self.assertFaults(ValueRangeError)
        self.assertEqual(builder.input_slice.height, 8)

    def testSliceTrailingCharacters(self):
        self.resolve("-L", "1,2:3,4,5")
        self.assertFaults(MalformedSliceError)
        self.assertIn('"1,2:3,4,5"', self.diagnostics.faults[0].message)

    def testBaseTilesOneBank(self):
        self.assertEqual(self.resolve("-b", "5").base_tile_ids, [5, 0])

    def testBaseTilesTwoBanks(self):
        self.assertEqual(self.resolve("-b", "$80, 16").base_tile_ids, [128, 16])
        self.assertFaults()

    def testBaseTilesTooLarge(self):
        self.resolve("-b", "256")
        self.assertFaults(ValueRangeError)

    def testBaseTilesWrongSeparator(self):
        self.resolve("-b", "1;2")
        self.assertFaults(MalformedListError)
        self.assertIn('"1;2"', self.diagnostics.faults[0].message)

    def testBankCapacities(self):
        self.assertEqual(self.resolve("-N", "128").max_nb_tiles, [128, 0])
        self.assertEqual(self.resolve("-N", "256,256").max_nb_tiles, [256, 256])
        self.resolve("-N", "257")
        self.assertFaults(ValueRangeError)


class TestPaths(ResolverTestCase):
    def testEmptyPathIsRejected(self):
        builder = self.resolve("-o", "", "img.png")
        self.assertIsNone(builder.output)
        self.assertEqual(builder.input, Path("img.png"))
        self.assertFaults(EmptyPathError)
        self.assertEqual(self.diagnostics.errors, 1)
        fault = self.diagnostics.faults[0]
        self.assertEqual(fault.message, "Tile data file path cannot be empty")
        self.assertEqual(fault.location, "command line, first argument")

    def testEmptyPathKeepsEarlierValue(self):
        builder = self.resolve("-t", "map.bin", "--tilemap=")
        self.assertEqual(builder.tilemap, Path("map.bin"))
        self.assertFaults(EmptyPathError)

    def testOverridingWarnsOnce(self):
        builder = self.resolve("-o", "a.2bpp", "-o", "b.2bpp")
        self.assertEqual(builder.output, Path("b.2bpp"))
        self.assertFaults(OverridingPathWarning)
        self.assertEqual(self.diagnostics.faults[0].message, "Overriding tile data file a.2bpp")
        self.assertEqual(self.diagnostics.errors, 0)

    def testOverridingIsReportedAsWarning(self):
        diagnostics = Diagnostics()
        with self.assertWarns(OverridingPathWarning):
            ArgumentSourceStack(["-t", "a", "-t", "b"], diagnostics).drain(OptionResolver(Builder(), diagnostics))

    def testExplicitAfterAuto(self):
        builder = self.resolve("-T", "-t", "map.bin")
        self.assertFalse(builder.deferred.auto_tilemap)
        self.assertEqual(builder.tilemap, Path("map.bin"))
        self.assertFaults()

    def testAutoAfterExplicit(self):
        builder = self.resolve("-a", "attr.bin", "-A")
        self.assertFalse(builder.deferred.auto_attrmap)
        self.assertEqual(builder.attrmap, Path("attr.bin"))

    def testAutoFlags(self):
        builder = self.resolve("-ATPQ", "-O")
        deferred = builder.deferred
        self.assertTrue(deferred.auto_attrmap and deferred.auto_tilemap and deferred.auto_palettes and deferred.auto_palmap)
        self.assertTrue(deferred.group_outputs)

    def testDeprecatedAliasWarns(self):
        builder = self.resolve("--output-tilemap")
        self.assertTrue(builder.deferred.auto_tilemap)
        self.assertFaults(DeprecatedOptionWarning)
        self.assertEqual(
            self.diagnostics.faults[0].message,
            "`--output-tilemap` is deprecated, use `--auto-tilemap` instead",
        )


class TestToggles(ResolverTestCase):
    def testMirroringImpliesDedup(self):
        builder = self.resolve("-m")
        self.assertTrue(builder.allow_mirroring)
        self.assertTrue(builder.allow_dedup)

    def testVerbosityIsBounded(self):
        self.assertEqual(self.resolve("-vv").verbosity, Verbosity.LOG_ACT)
        self.assertEqual(self.resolve("-vvvvvvvvvv").verbosity, Verbosity.VVVVVV)


class TestColors(ResolverTestCase):
    def testInlineSpec(self):
        builder = self.resolve("-c", "#fff,#000")
        self.assertEqual(builder.pal_spec_type, PalSpecType.EXPLICIT)
        self.assertEqual(builder.pal_spec, ((Rgba(255, 255, 255), Rgba(0, 0, 0), None, None),))

    def testEmbedded(self):
        self.assertEqual(self.resolve("-c", "EMBEDDED").pal_spec_type, PalSpecType.EMBEDDED)

    def testExternalSpecIsDeferred(self):
        builder = self.resolve("-c", "act:pal.act")
        self.assertEqual(builder.pal_spec_type, PalSpecType.EXPLICIT)
        self.assertEqual(builder.deferred.external_palspec, "act:pal.act")
        self.assertEqual(builder.pal_spec, ())

    def testLastSpecWins(self):
        builder = self.resolve("-c", "act:pal.act", "-c", "#123")
        self.assertIsNone(builder.deferred.external_palspec)
        self.assertEqual(len(builder.pal_spec), 1)

    def testMalformedInlineSpec(self):
        self.resolve("-c", "#12")
        self.assertEqual(self.diagnostics.errors, 1)


if __name__ == '__main__':
    unittest.main()
