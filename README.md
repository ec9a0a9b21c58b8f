# cqplugins

Building blocks for a group-chat bot. Each module covers one feature: it parses,
schedules, stores or formats, and hands back plain Python values. Delivering the
result into a chat is the job of your own bot code.

## Modules

- `cqplugins.timer`: the `Timer` dataclass for group reminders. Month, day, weekday,
  hour and minute are packed into one integer (`emdwhm`) and read through attributes;
  a field of all ones reads as -1, meaning "every". `get_filled_timer` builds a timer
  from the groups of a Chinese reminder command and raises `ValueError` for an
  out-of-range field; `get_filled_cron_timer` builds a cron-driven one.
  `chinese_num_to_int` and `chinese_char_to_int` read numbers such as `十二` or `每`.
  `Timer.timer_info`, `Timer.timer_id` and `Timer.message` give the timer's identity
  string, its numeric key and the message segments to send.
- `cqplugins.wake`: `next_wake_time` works out when a calendar timer should next be
  checked, `is_due` whether it matches a given moment, and `first_weekday` finds the
  first given weekday of a month.
- `cqplugins.clock`: `Clock` stores timers in SQLite, runs each on its own thread and
  calls your `sender(timer)` when one fires. `register_timer`, `cancel_timer`,
  `list_timers`, `get_timer` and `close` manage them; stored timers are reloaded when
  a `Clock` is created. `parse_cron` reads five-field cron expressions and descriptors
  such as `@daily` or `@every 1h` into a `CronSchedule`, whose `next_after` gives the
  next activation.
- `cqplugins.manager`: `welcome_to_cq` fills the `{at}`, `{nickname}`, `{avatar}`,
  `{uid}`, `{gid}` and `{groupname}` placeholders of a template; `mute_minutes` turns
  an amount and unit into minutes capped at 43199; `unescape_forward` restores CQ code
  brackets; `toggle_join_check` and `toggle_gist_approval` switch bits in a group's
  settings word; `pick_lucky_member` picks one of the ten most recent speakers.
  `ManagerStore` keeps welcome and farewell templates and admitted members in SQLite.
  `check_new_user` verifies a join request: the applicant's answer
  (`parse_gist_answer`) names a gist whose file, named after the MD5 of the group
  number (`gist_url`), must hold a Unix timestamp less than ten minutes old.
- `cqplugins.midi`: `build_midi` and `write_midi` turn note text such as `CCGGAAGR`
  into a one-track MIDI file (letters are notes, `b` and `#` flatten and sharpen,
  digits give the octave, `R` is a rest, `<n` makes the length 2**n quarters) and
  raise `MidiParseError` on an unreadable character. `midi_to_text` reads a track
  back into that text. `parse_note`, `note_name`, `octave_note` and `validate_timbre`
  are the helpers. `render_wav` runs the external `timidity` program, which must be
  installed, to produce a WAV file.
- `cqplugins.moyu`: `Holiday`, `parse_holiday` for `days_year_month_day` records,
  `weekend_message` and `reminder_text` for the daily slacker reminder.
- `cqplugins.nsfw`: `judge` and `auto_judge` turn a `Classification` of scores into a
  short verdict.
- `cqplugins.hyaku`: `load_poems` reads the hundred-poem CSV into `Poem` records;
  `image_urls` gives a poem's pictures.
- `cqplugins.github`: `search_repository`, `format_repository` and
  `preview_image_url`.
- `cqplugins.nbnhhsh` (`guess`, `parse_guess`), `cqplugins.juejuezi` (`juejuezi`,
  `split_input`, `request_body`), `cqplugins.hs` (`search_cards`, `deck_image`) and
  `cqplugins.image_finder` (`search`, `format_tags`, `clean_description`): clients
  for small web services.
- `cqplugins.jandan`: `PictureStore` keeps picture URLs in SQLite keyed by CRC-64;
  `update_store` walks back through the picture board until it meets a known picture.
- `cqplugins.omikuji`: `image_urls` for fortune slip pictures and `KujiStore` for
  their readings.
- `cqplugins.nativesetu`: `SetuLibrary` indexes folders of images in SQLite by
  difference hash (`dhash`) and picks random pictures per folder.
- `cqplugins.nativewife`: `WifeGallery` keeps one folder of pictures per group; the
  daily draw (`wife_index`) stays fixed for a nickname and day.
- `cqplugins.lolicon`: `ImageQueue`, a bounded queue of image references filled two at
  a time; `parse_lolicon` and `image_name` read the API replies.

## Examples

```python
from cqplugins.timer import get_filled_timer

# Every week of December at 12:00, remind everyone: "test"
timer = get_filled_timer(["", "12", "每周", "12", "0", "", "test"], 0, 0, False)
print(timer.timer_info())   # [0]12月0日-1周12:0
print(timer.timer_id())
```

```python
from cqplugins.clock import Clock
from cqplugins.timer import get_filled_cron_timer

with Clock("timers.db", sender=lambda t: print(t.message())) as clock:
    key = clock.register_timer(get_filled_cron_timer("30 8 * * *", "早上好", "", 0, 1234), True)
    print(clock.list_timers(1234))
```

```python
from cqplugins.midi import note_name, octave_note, write_midi

print(note_name(61))      # Db
print(octave_note(0, 5))  # 60
write_midi("CCGGAAGR FFEEDDCR", "song.mid")
```

## What the package does not do

It does not connect to a chat server, listen for messages or route commands; there
is no bot runtime and no command-line program. Image classification, word
segmentation, image drawing and uploading are not provided: `nsfw` only interprets
scores you supply, and `juejuezi.split_input` leaves longer text for you to split.
Data files such as the poem CSV and the fortune readings are not shipped; the stores
read what you put in them.

## Testing

The test suite uses pytest and responses, both listed in the `test` extra.