"""The colour picture processing unit: VRAM, OAM, LCD registers and scanline rendering."""

from __future__ import annotations

from enum import Enum
from typing import Callable, List, Optional

VRAM_SIZE = 0x4000
VOAM_SIZE = 0xA0
SCREEN_W = 160
SCREEN_H = 144

_LINE_TICKS = 456
_OAM_TICKS = 80
_TRANSFER_TICKS = 172
_LINES = 154
_MAX_SPRITES_PER_LINE = 10

ScreenCallback = Callable[[bytes], None]


class _Prio(Enum):
    COLOR0 = 0
    PRIO_FLAG = 1
    NORMAL = 2


def _monochrome_pal_val(value: int, index: int) -> int:
    return (255, 192, 96, 0)[(value >> (2 * index)) & 0x03]


def _new_palettes() -> List[List[List[int]]]:
    return [[[0, 0, 0] for _ in range(4)] for _ in range(8)]


def _read_palette(pal: List[List[List[int]]], ind: int) -> int:
    colour = pal[ind >> 3][(ind >> 1) & 0x3]
    if ind & 0x01 == 0:
        return colour[0] | ((colour[1] & 0x07) << 5)
    return ((colour[1] & 0x18) >> 3) | (colour[2] << 2)


def _write_palette(pal: List[List[List[int]]], ind: int, v: int) -> None:
    colour = pal[ind >> 3][(ind >> 1) & 0x3]
    if ind & 0x01 == 0:
        colour[0] = v & 0x1F
        colour[1] = (colour[1] & 0x18) | (v >> 5)
    else:
        colour[1] = (colour[1] & 0x07) | ((v & 0x3) << 3)
        colour[2] = (v >> 2) & 0x1F


def _signed8(v: int) -> int:
    return v - 0x100 if v & 0x80 else v


class Gpu:
    """Renders one scanline at a time into an RGB frame and hands out whole frames."""

    def __init__(self, update_screen: Optional[ScreenCallback] = None) -> None:
        self._update_screen_cb: ScreenCallback = update_screen or (lambda frame: None)
        self._mode = 0
        self._modeclock = 0
        self._line = 0
        self._lyc = 0
        self._lcd_on = False
        self._win_tilemap = 0x9C00
        self._win_on = False
        self._tilebase = 0x8000
        self._bg_tilemap = 0x9C00
        self._sprite_size = 8
        self._sprite_on = False
        self._lcdc0 = False
        self._lyc_inte = False
        self._m0_inte = False
        self._m1_inte = False
        self._m2_inte = False
        self._scy = 0
        self._scx = 0
        self._winy = 0
        self._winx = 0
        self._wy_trigger = False
        self._wy_pos = -1
        self._palbr = 0
        self._pal0r = 0
        self._pal1r = 1
        self._palb = [0] * 4
        self._pal0 = [0] * 4
        self._pal1 = [0] * 4
        self._vram = bytearray(VRAM_SIZE)
        self._voam = bytearray(VOAM_SIZE)
        self._cbgpal_inc = False
        self._cbgpal_ind = 0
        self._cbgpal = _new_palettes()
        self._csprit_inc = False
        self._csprit_ind = 0
        self._csprit = _new_palettes()
        self._vrambank = 0
        self._data = bytearray(SCREEN_W * SCREEN_H * 3)
        self._bgprio = [_Prio.NORMAL] * SCREEN_W
        self.interrupt = 0
        self._hblanking = False

    # -- timing -----------------------------------------------------------

    def do_cycle(self, ticks: int) -> None:
        """Advance the LCD by ``ticks`` clock cycles, rendering lines as they finish."""
        if not self._lcd_on:
            return
        self._hblanking = False

        left = ticks
        while left > 0:
            cur = min(left, _OAM_TICKS)
            self._modeclock += cur
            left -= cur

            if self._modeclock >= _LINE_TICKS:
                self._modeclock -= _LINE_TICKS
                self._line = (self._line + 1) % _LINES
                self._check_interrupt_lyc()
                if self._line >= SCREEN_H and self._mode != 1:
                    self._change_mode(1)

            if self._line < SCREEN_H:
                if self._modeclock <= _OAM_TICKS:
                    wanted = 2
                elif self._modeclock <= _OAM_TICKS + _TRANSFER_TICKS:
                    wanted = 3
                else:
                    wanted = 0
                if self._mode != wanted:
                    self._change_mode(wanted)

    def _check_interrupt_lyc(self) -> None:
        if self._lyc_inte and self._line == self._lyc:
            self.interrupt |= 0x02

    def _change_mode(self, mode: int) -> None:
        self._mode = mode
        if mode == 0:
            self._renderscan()
            self._hblanking = True
            stat = self._m0_inte
        elif mode == 1:
            self._wy_trigger = False
            self.interrupt |= 0x01
            self._update_screen()
            stat = self._m1_inte
        elif mode == 2:
            stat = self._m2_inte
        else:
            if self._win_on and not self._wy_trigger and self._line == self._winy:
                self._wy_trigger = True
                self._wy_pos = -1
            stat = False
        if stat:
            self.interrupt |= 0x02

    def may_hdma(self) -> bool:
        """Whether an HBlank DMA block may be copied now."""
        return self._hblanking

    # -- registers --------------------------------------------------------

    def rb(self, a: int) -> int:
        """Read VRAM, OAM or an LCD register."""
        if 0x8000 <= a <= 0x9FFF:
            return self._vram[(self._vrambank * 0x2000) | (a & 0x1FFF)]
        if 0xFE00 <= a <= 0xFE9F:
            return self._voam[a - 0xFE00]
        if a == 0xFF40:
            return (
                (0x80 if self._lcd_on else 0)
                | (0x40 if self._win_tilemap == 0x9C00 else 0)
                | (0x20 if self._win_on else 0)
                | (0x10 if self._tilebase == 0x8000 else 0)
                | (0x08 if self._bg_tilemap == 0x9C00 else 0)
                | (0x04 if self._sprite_size == 16 else 0)
                | (0x02 if self._sprite_on else 0)
                | (0x01 if self._lcdc0 else 0)
            )
        if a == 0xFF41:
            return (
                0x80
                | (0x40 if self._lyc_inte else 0)
                | (0x20 if self._m2_inte else 0)
                | (0x10 if self._m1_inte else 0)
                | (0x08 if self._m0_inte else 0)
                | (0x04 if self._line == self._lyc else 0)
                | self._mode
            )
        simple = {
            0xFF42: self._scy,
            0xFF43: self._scx,
            0xFF44: self._line,
            0xFF45: self._lyc,
            0xFF46: 0,
            0xFF47: self._palbr,
            0xFF48: self._pal0r,
            0xFF49: self._pal1r,
            0xFF4A: self._winy,
            0xFF4B: self._winx,
            0xFF4C: 0xFF,
            0xFF4E: 0xFF,
            0xFF4F: self._vrambank | 0xFE,
        }
        if a in simple:
            return simple[a]
        if a == 0xFF68:
            return 0x40 | self._cbgpal_ind | (0x80 if self._cbgpal_inc else 0)
        if a == 0xFF69:
            return _read_palette(self._cbgpal, self._cbgpal_ind)
        if a == 0xFF6A:
            return 0x40 | self._csprit_ind | (0x80 if self._csprit_inc else 0)
        if a == 0xFF6B:
            return _read_palette(self._csprit, self._csprit_ind)
        return 0xFF

    def _rbvram0(self, a: int) -> int:
        if not 0x8000 <= a < 0xA000:
            raise RuntimeError(f"VRAM bank 0 read outside VRAM: {a:04X}")
        return self._vram[a & 0x1FFF]

    def _rbvram1(self, a: int) -> int:
        if not 0x8000 <= a < 0xA000:
            raise RuntimeError(f"VRAM bank 1 read outside VRAM: {a:04X}")
        return self._vram[0x2000 + (a & 0x1FFF)]

    def wb(self, a: int, v: int) -> None:
        """Write VRAM, OAM or an LCD register."""
        v &= 0xFF
        if 0x8000 <= a <= 0x9FFF:
            self._vram[(self._vrambank * 0x2000) | (a & 0x1FFF)] = v
        elif 0xFE00 <= a <= 0xFE9F:
            self._voam[a - 0xFE00] = v
        elif a == 0xFF40:
            self._write_lcdc(v)
        elif a == 0xFF41:
            self._lyc_inte = v & 0x40 == 0x40
            self._m2_inte = v & 0x20 == 0x20
            self._m1_inte = v & 0x10 == 0x10
            self._m0_inte = v & 0x08 == 0x08
        elif a == 0xFF42:
            self._scy = v
        elif a == 0xFF43:
            self._scx = v
        elif a == 0xFF44:
            pass  # read-only
        elif a == 0xFF45:
            self._lyc = v
        elif a == 0xFF46:
            raise ValueError("0xFF46 (OAM DMA) must be handled by the memory unit")
        elif a == 0xFF47:
            self._palbr = v
            self._update_pal()
        elif a == 0xFF48:
            self._pal0r = v
            self._update_pal()
        elif a == 0xFF49:
            self._pal1r = v
            self._update_pal()
        elif a == 0xFF4A:
            self._winy = v
        elif a == 0xFF4B:
            self._winx = v
        elif a in (0xFF4C, 0xFF4E):
            pass
        elif a == 0xFF4F:
            self._vrambank = v & 0x01
        elif a == 0xFF68:
            self._cbgpal_ind = v & 0x3F
            self._cbgpal_inc = v & 0x80 == 0x80
        elif a == 0xFF69:
            _write_palette(self._cbgpal, self._cbgpal_ind, v)
            if self._cbgpal_inc:
                self._cbgpal_ind = (self._cbgpal_ind + 1) & 0x3F
        elif a == 0xFF6A:
            self._csprit_ind = v & 0x3F
            self._csprit_inc = v & 0x80 == 0x80
        elif a == 0xFF6B:
            _write_palette(self._csprit, self._csprit_ind, v)
            if self._csprit_inc:
                self._csprit_ind = (self._csprit_ind + 1) & 0x3F
        else:
            raise ValueError(f"GPU does not handle write {a:04X}")

    def _write_lcdc(self, v: int) -> None:
        was_on = self._lcd_on
        self._lcd_on = v & 0x80 == 0x80
        self._win_tilemap = 0x9C00 if v & 0x40 else 0x9800
        self._win_on = v & 0x20 == 0x20
        self._tilebase = 0x8000 if v & 0x10 else 0x8800
        self._bg_tilemap = 0x9C00 if v & 0x08 else 0x9800
        self._sprite_size = 16 if v & 0x04 else 8
        self._sprite_on = v & 0x02 == 0x02
        self._lcdc0 = v & 0x01 == 0x01
        if was_on and not self._lcd_on:
            self._modeclock = 0
            self._line = 0
            self._mode = 0
            self._wy_trigger = False
            self._clear_screen()
        if not was_on and self._lcd_on:
            self._change_mode(2)
            self._modeclock = 4

    # -- output -----------------------------------------------------------

    def _clear_screen(self) -> None:
        self._data[:] = b"\xff" * len(self._data)
        self._update_screen()

    def _update_screen(self) -> None:
        self._update_screen_cb(bytes(self._data))

    def _update_pal(self) -> None:
        for i in range(4):
            self._palb[i] = _monochrome_pal_val(self._palbr, i)
            self._pal0[i] = _monochrome_pal_val(self._pal0r, i)
            self._pal1[i] = _monochrome_pal_val(self._pal1r, i)

    def _renderscan(self) -> None:
        start = self._line * SCREEN_W * 3
        self._data[start:start + SCREEN_W * 3] = b"\xff" * (SCREEN_W * 3)
        self._bgprio = [_Prio.NORMAL] * SCREEN_W
        self._draw_bg()
        self._draw_sprites()

    def _setrgb(self, x: int, colour: List[int]) -> None:
        # Colour correction as done by the Gambatte emulator; components are 0..0x1F.
        r, g, b = colour
        base = self._line * SCREEN_W * 3 + x * 3
        self._data[base] = ((r * 13 + g * 2 + b) >> 1) & 0xFF
        self._data[base + 1] = ((g * 3 + b) << 1) & 0xFF
        self._data[base + 2] = ((r * 3 + g * 2 + b * 11) >> 1) & 0xFF

    def _draw_bg(self) -> None:
        drawbg = self._lcdc0

        if self._win_on and self._wy_trigger and self._winx <= 166:
            self._wy_pos += 1
            winy = self._wy_pos
        else:
            winy = -1

        if winy < 0 and not drawbg:
            return

        wintiley = (winy >> 3) & 31
        bgy = (self._scy + self._line) & 0xFF
        bgtiley = (bgy >> 3) & 31

        for x in range(SCREEN_W):
            winx = x - (self._winx - 7)
            bgx = self._scx + x

            if winy >= 0 and winx >= 0:
                tilemapbase, tiley, tilex = self._win_tilemap, wintiley, winx >> 3
                pixely, pixelx = winy & 0x07, winx & 0x07
            elif drawbg:
                tilemapbase, tiley, tilex = self._bg_tilemap, bgtiley, (bgx >> 3) & 31
                pixely, pixelx = bgy & 0x07, bgx & 0x07
            else:
                continue

            mapaddr = tilemapbase + tiley * 32 + tilex
            tilenr = self._rbvram0(mapaddr)
            flags = self._rbvram1(mapaddr)
            palnr = flags & 0x07
            vram1 = flags & 0x08 != 0
            xflip = flags & 0x20 != 0
            yflip = flags & 0x40 != 0
            prio = flags & 0x80 != 0

            index = tilenr if self._tilebase == 0x8000 else _signed8(tilenr) + 128
            tileaddress = self._tilebase + index * 16
            a0 = tileaddress + (14 - pixely * 2 if yflip else pixely * 2)

            read = self._rbvram1 if vram1 else self._rbvram0
            b1, b2 = read(a0), read(a0 + 1)

            xbit = pixelx if xflip else 7 - pixelx
            colnr = ((b1 >> xbit) & 1) | (((b2 >> xbit) & 1) << 1)

            if colnr == 0:
                self._bgprio[x] = _Prio.COLOR0
            elif prio:
                self._bgprio[x] = _Prio.PRIO_FLAG
            else:
                self._bgprio[x] = _Prio.NORMAL

            self._setrgb(x, self._cbgpal[palnr][colnr])

    def _draw_sprites(self) -> None:
        if not self._sprite_on:
            return

        line = self._line
        size = self._sprite_size

        visible = []
        for index in range(40):
            spritey = self._voam[index * 4] - 16
            if line < spritey or line >= spritey + size:
                continue
            spritex = self._voam[index * 4 + 1] - 8
            visible.append((spritex, spritey, index))
            if len(visible) >= _MAX_SPRITES_PER_LINE:
                break

        # Colour hardware orders purely by OAM position: lower indices end up on top.
        visible.sort(key=lambda sprite: sprite[2], reverse=True)

        for spritex, spritey, index in visible:
            if spritex < -7 or spritex >= SCREEN_W:
                continue

            base = index * 4
            tilenum = self._voam[base + 2] & (0xFE if size == 16 else 0xFF)
            flags = self._voam[base + 3]
            xflip = flags & 0x20 != 0
            yflip = flags & 0x40 != 0
            belowbg = flags & 0x80 != 0
            palnr = flags & 0x07
            vram1 = flags & 0x08 != 0

            tiley = size - 1 - (line - spritey) if yflip else line - spritey
            tileaddress = 0x8000 + tilenum * 16 + tiley * 2
            read = self._rbvram1 if vram1 else self._rbvram0
            b1, b2 = read(tileaddress), read(tileaddress + 1)

            for x in range(8):
                sx = spritex + x
                if sx < 0 or sx >= SCREEN_W:
                    continue
                xbit = x if xflip else 7 - x
                colnr = ((b1 >> xbit) & 1) | (((b2 >> xbit) & 1) << 1)
                if colnr == 0:
                    continue
                if self._lcdc0 and (
                    self._bgprio[sx] is _Prio.PRIO_FLAG
                    or (belowbg and self._bgprio[sx] is not _Prio.COLOR0)
                ):
                    continue
                self._setrgb(sx, self._csprit[palnr][colnr])