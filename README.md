# picokern

The services of a small teaching kernel, written as a plain Python library.
Each part works on bytes, integers and Python objects, so you can use and
test it without a board or an emulator:

- `picokern.cpio`: reads "newc" (`070701`) cpio archives, as used for an
  initramfs.
- `picokern.bootloader`: the header, checksum and receive logic for sending
  a kernel image over a serial line.
- `picokern.buddy`: a buddy page allocator with a maximum order of 11 and
  4 KiB pages.
- `picokern.pool`: a bump allocator, and a dynamic allocator that keeps
  fixed-size chunk pools of 16 to 2048 bytes on top of the buddy allocator.
- `picokern.timer`: a timer queue ordered by expiry time, with message
  timeouts.
- `picokern.uart`: ring buffers for interrupt-driven UART I/O, hex and
  decimal formatting, and a line editor.
- `picokern.exception`: decodes exception syndromes and classifies IRQ
  sources.
- `picokern.mailbox`: the peripheral register map, mailbox property
  messages, and reset register values.

## Installation

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Using the library

Reading an initramfs archive:

```python
from picokern.cpio import CpioArchive

with open("initramfs.cpio", "rb") as fh:
    archive = CpioArchive(fh.read())

for name in archive.names():
    print(name)

print(archive.read("file1"))         # FileNotFoundError if absent
print(archive.find_offset("file1"))  # where the file's data starts
```

Preparing and receiving a kernel image for the serial bootloader:

```python
import io
from picokern.bootloader import build_image, receive_kernel

with open("kernel8.img", "rb") as fh:
    image = build_image(fh.read())   # 12-byte header + kernel

kernel = receive_kernel(io.BytesIO(image))  # BootError on a bad signature or checksum
```

Allocating pages and small blocks:

```python
from picokern.buddy import BuddyAllocator
from picokern.pool import BumpAllocator, DynamicAllocator

buddy = BuddyAllocator(0x10000000, 16 * 1024 * 1024)
pages = buddy.alloc_pages(2)   # four contiguous pages
buddy.free_pages(pages)
print(buddy.stats())

heap = DynamicAllocator(buddy)
block = heap.malloc(31)        # served from the 32-byte pool
heap.free(block)

bump = BumpAllocator(0x1000, 0x2000)
bump.alloc(5)                  # 8-byte aligned; MemoryError when exhausted
```

Pass a callable such as `print` as the `log` argument of `BuddyAllocator`
or `DynamicAllocator` to see a trace of every split, merge and chunk hand-out.

Timers driven by your own clock:

```python
from picokern.timer import TimerQueue

now = [0]
timers = TimerQueue(lambda: now[0], print)
timers.set_timeout("hello", 3)
now[0] = 3
timers.handle_irq()   # prints the message block and returns 1
```

Buffered UART and line editing:

```python
from picokern.uart import AsyncUart, LineEditor, format_hex

uart = AsyncUart()
uart.irq_receive("hi")
uart.read(10)          # "hi"
uart.write("ok")
uart.irq_transmit()    # "o"

editor = LineEditor()
for char in "ls\r":
    echo, line = editor.feed(char)
print(line)            # "ls"

format_hex(0xA020D3)   # "0x00a020d3"
```

Exceptions, interrupts and mailbox messages:

```python
from picokern.exception import classify_irq, describe_exception
from picokern.mailbox import board_revision_request, parse_board_revision, reset_values

classify_irq(2, 0, 0)                     # IrqSource.TIMER
print(describe_exception(0x3C0, 0x80000, 0x56000000))

request = board_revision_request()        # seven words, ready to send
rstc, wdog = reset_values(0)
```

## What this package does not do

There is no interactive shell and no command to run: the package is a
library only. It also has no device tree reader, so an initramfs address
has to be supplied by the caller rather than found in a device tree blob.
Nothing here touches real hardware registers; the register map and the
values computed for them are for you to use as you see fit.