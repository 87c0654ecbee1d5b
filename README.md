# flagkit

`flagkit` is a small library for typed command-line flags. A flag can have
several names. It can take a fallback value from environment variables or
files, hold its value in a destination object you pass in, and describe itself
in one line of help text.

## Installation

```
pip install flagkit
```

To run the test suite:

```
pip install "flagkit[test]"
pytest
```

## Modules

- `flagkit.values`: value types that parse text: `BoolValue`, `IntValue`,
  `Int64Value`, `Float64Value` and `DurationValue`. They come with their
  configs `NoConfig`, `BoolConfig` and `IntegerConfig`, and with the helpers
  `parse_bool`, `parse_int`, `parse_duration`, `format_duration` and
  `format_float`.
- `flagkit.flags`: `FlagSet`, which parses `-name` / `--name` arguments, and
  `FlagParseError`. It also holds the help-text helpers (`stringify_flag`,
  `prefixed_names`, `unquote_usage`, `with_env_hint` and others),
  `flag_from_env_or_file`, `split_multi_values`, `normalize_flags` and `ExtFlag`.
- `flagkit.base`: `FlagBase` and the scalar flags `BoolFlag`, `IntFlag`,
  `Int64Flag`, `Float64Flag` and `DurationFlag`, plus `ValueWrapper`.
- `flagkit.mapping`: `MapFlag`, `MapValue` and `new_map`, for `key=value` flags.
- `flagkit.inverse`: `BoolWithInverseFlag`, which pairs `--env` with `--no-env`.
- `flagkit.errors`: error types and `handle_exit_coder`.

## Flag types

- `BoolFlag`: on/off switches. The shared `BoolConfig.count` records how many
  times the value was set.
- `IntFlag`: integers parsed in `IntegerConfig.base`. Base 0, the default,
  reads the base from a `0b`, `0o`, `0x` or leading `0` prefix.
- `Int64Flag`: 64-bit integers, always read with prefix detection.
- `Float64Flag`: floating-point values.
- `DurationFlag`: `datetime.timedelta` values written like `1h30m` or `250ms`.
  The units are `ns`, `us`/`µs`, `ms`, `s`, `m` and `h`. Anything finer than a
  microsecond is dropped.
- `MapFlag(name=..., element_type=IntValue)`: a flag that takes `key=value`
  items, several to an argument, separated by commas. Each value is parsed by
  `element_type`. The first item given replaces the default mapping.

## Parsing

Apply each flag to a `FlagSet`, then parse the argument list:

```python
from flagkit.base import BoolFlag, IntFlag
from flagkit.flags import flag_set

port = IntFlag(name="port", aliases=["p"], value=8080, env_vars=["APP_PORT"])
verbose = BoolFlag(name="verbose", aliases=["v"], usage="print more output")

fs = flag_set("serve", [port, verbose])
fs.parse(["-p", "9000", "--verbose", "extra"])

port.get(fs)     # 9000
verbose.get(fs)  # True
fs.args()        # ['extra']
```

A flag's names all share one value, so setting any name changes all of them.
Where a value comes from, in order of precedence:

1. the command line,
2. the first variable in `env_vars` that is set,
3. the first readable file in `file_paths`,
4. the flag's `value` default.

`flag.is_set()` is true when the value came from the environment or from a
file.

Errors:

- Bad command-line arguments make `FlagSet.parse` raise
  `flagkit.flags.FlagParseError`. This covers unknown flags, a missing
  argument and values that fail to parse.
- An environment or file value that cannot be parsed makes `apply` raise
  `ValueError`. The message names the value, where it came from and the flag.
- A flag created with `only_once=True` refuses to be given twice.

The separators live in `flagkit.flags.settings`: `slice_separator` (`,`),
`map_key_value_separator` (`=`) and `disable_slice_separator`.

### Inverse booleans

```python
from flagkit.base import BoolFlag
from flagkit.flags import FlagSet
from flagkit.inverse import BoolWithInverseFlag

env = BoolWithInverseFlag(BoolFlag(name="env"))
fs = FlagSet("app")
env.apply(fs)
fs.parse(["--no-env"])
env.run_action(fs)
env.is_set(), env.value()   # (True, False)
```

`run_action` raises `ValueError` when both forms were given. Otherwise it
passes the negative form on to the positive flag and then runs the flag's
`action`. The prefix is set by `inverse_prefix` and defaults to `no-`. The
environment variables of the negative form get the prefix in upper case, for
example `NO-ENV`.

## Help text

`str(flag)` gives the line that help output uses for a flag. The line holds
each name with its dashes, a placeholder if the flag takes a value, the usage,
the default and the environment variables:

```python
str(IntFlag(name="hats", value=9))
# '--hats value\t(default: 9)'
```

A word in backquotes inside `usage` becomes the placeholder, so
``"Load configuration from `FILE`"`` shows as `--config FILE`. Multi-value
flags repeat their names, as in `--flag value [ --flag value ]`.

## Errors and exit codes

```python
import sys
from flagkit.errors import exit, handle_exit_coder

err = exit("galactic perimeter breach", 9)
handle_exit_coder(err, sys.exit, sys.stderr)  # prints the message, exits with 9
```

`MultiError` collects several errors. `handle_exit_coder` prints each of them
and exits with the code of the last `ExitError` it holds, or with 1 if it
holds none. Other errors are ignored. `RequiredFlagsError`,
`MutuallyExclusiveGroupError` and `MutuallyExclusiveGroupRequiredError` give
the standard messages for missing or conflicting flags.

## What it does not do

`flagkit` handles flags only. It has no application or sub-command runner, so
required flags are not enforced for you and flag actions are not called for
you. It does not render a full help screen or generate shell completions. It
has no string, list or timestamp flag types beyond those listed above.