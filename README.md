# homecfg

homecfg manages a directory of configuration folders. It symlinks or copies
them into a target directory such as `~/.config`. It can also install or
uninstall the packages those configurations need, using the package manager
it finds on the system.

## Layout of the source directory

By default the source directory is `~/.config/homecfg`. The configurations
live in its `config/` subdirectory:

```
~/.config/homecfg/config/
    DEPENDENCIES        # global dependencies, one "method:pkg [pkg ...]" per line
    fish/
        INSTALL         # one instruction, e.g. "system:fish"
        DEPENDENCIES    # optional, one "method:pkg" per line
    .ghostty/           # a leading dot hides a config
```

Each subdirectory of `config/` is one config, except `.git`. A visible config
is placed in the target under its own name. A hidden config (leading dot) is
recorded under its name without the dot and is removed from the target.

An instruction line has the form `method:pkg`. A line that starts with `//`
is skipped. These methods are recognised:

- `system` uses the first of apt, pacman, dnf or brew that is found on the `PATH`
- `apt`, `pacman`, `dnf` and `brew`
- `aur` uses the first of paru, yay, pacaur or aurman that is found on the `PATH`
- `yay` and `paru`
- `cargo` and `cargo-binstall`
- `bash` runs the rest of the line as a command

`pacaur` and `aurman` are accepted, but building a command for them raises
`InstructionError`, because their commands have not been verified.

Commands are split on single spaces and run attached to the terminal. `sudo`
is part of the apt and pacman commands.

When a config is uninstalled, homecfg looks for an `UNINSTALL` script in the
directory that has the same name as the config's source directory with one
more leading dot. If the script exists, homecfg runs it with `bash`. After
that it runs the uninstall command for the config's `INSTALL` method.

## Usage

```
homecfg [--copy] [--install | --upgrade] [--uninstall] [--manage]
        [--only-install | --only-uninstall] [--pkgs LIST]
        [--sourcedir DIR] [--targetdir DIR] [--tui] [--dbg]
```

Each option can also be written with a single dash, for example `-copy`.

- `homecfg` symlinks every visible config into the target and removes every hidden one from it.
- `homecfg --copy` copies the visible configs instead of symlinking them.
- `homecfg --install` also installs the global dependencies and each visible config's dependencies and `INSTALL` package. Packages already recorded as installed are skipped.
- `homecfg --upgrade` installs as well, and always reinstalls the global dependencies.
- `homecfg --uninstall` uninstalls the packages of hidden configs.
- `homecfg --manage` is the same as `--install --uninstall`.
- `homecfg --only-install` and `homecfg --only-uninstall` do only the package work and leave the target directory alone.
- `homecfg --dbg` logs at debug level.
- `homecfg --tui` opens an interactive selection before the run.

`--sourcedir` defaults to `$HOME/.config/homecfg` and `--targetdir` to
`$HOME/.config`. Conflicting flags, such as `--install` with `--upgrade`, are
rejected, and the command exits with status 1.

After each run, homecfg writes two files to the target directory:

- `hmlock.json` records the configs, hidden configs and global dependencies, with their install state.
- `hmlock_diff.json` lists what changed since the previous run: added, removed and previously removed configs, added and removed global dependencies, and whether the mode or the version changed.

If the previous lockfile cannot be read, homecfg starts from an empty one.

### Interactive selection

With `--tui`, a curses screen steps through four pages:

1. program flags
2. configs
3. global dependencies, with one entry per package
4. whether to persist the selections

The keys are:

- Space toggles the item under the cursor.
- Up/Down or `k`/`j` move the cursor, and PageUp/PageDown move it by ten.
- Tab goes to the next page and Shift+Tab to the previous one.
- Enter on the last page runs the selection.
- `q` or Ctrl+C quits with status 1.

Persisting the config selection renames config directories to add or drop the
leading dot. Persisting the global dependency selection rewrites
`config/DEPENDENCIES`.

## Using it as a library

- `homecfg.configuration.parse(argv)` returns a `Configuration`.
- `homecfg.runner.run_cli(config)` performs a non-interactive run and returns the `LockfileDiff`.
- `homecfg.lockfile` holds `Lockfile` and `LockfileDiff`, along with `create_lock_based_on_configs`, `diff_locks`, `read_or_create_lockfile` and `parse_lockfile`.
- `homecfg.models` parses `INSTALL` and `DEPENDENCIES` files (`parse_requirements`, `parse_dependencies`, `parse_install_instruction`).
- `homecfg.instructions.InstallMethod` builds install and uninstall commands, and `homecfg.instructions.init()` detects the package managers.

## Limitations

- `--pkgs` is parsed into `Configuration.pkgs`, but it does not yet limit which packages are installed or uninstalled.
- The dependencies listed in a config's `DEPENDENCIES` file are installed, but they are never uninstalled.
- The interactive mode needs a terminal with curses support, so it does not run on platforms without the `curses` module.