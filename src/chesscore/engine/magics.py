"""Known-good magic multipliers indexed by square (a1=0).

Relevancy masks exclude board edges and each shift is ``64 - popcount(mask)``.
Rook and bishop geometry is symmetric under a vertical flip, so the values
do not depend on which rank is numbered first. ``AttackTables.build``
verifies every multiplier against all blocker subsets before use.
"""

ROOK_MAGICS = (
    0xa080041440042080, 0xa840200410004001, 0xc800c1000200081, 0x100081001000420,
    0x200020010080420, 0x3001c0002010008, 0x8480008002000100, 0x2080088004402900,
    0x800098204000, 0x2024401000200040, 0x100802000801000, 0x120800800801000,
    0x208808088000400, 0x2802200800400, 0x2200800100020080, 0x801000060821100,
    0x80044006422000, 0x100808020004000, 0x12108a0010204200, 0x140848010000802,
    0x481828014002800, 0x8094004002004100, 0x4010040010010802, 0x20008806104,
    0x100400080208000, 0x2040002120081000, 0x21200680100081, 0x20100080080080,
    0x2000a00200410, 0x20080800400, 0x80088400100102, 0x80004600042881,
    0x4040008040800020, 0x440003000200801, 0x4200011004500, 0x188020010100100,
    0x14800401802800, 0x2080040080800200, 0x124080204001001, 0x200046502000484,
    0x480400080088020, 0x1000422010034000, 0x30200100110040, 0x100021010009,
    0x2002080100110004, 0x202008004008002, 0x20020004010100, 0x2048440040820001,
    0x101002200408200, 0x40802000401080, 0x4008142004410100, 0x2060820c0120200,
    0x1001004080100, 0x20c020080040080, 0x2935610830022400, 0x44440041009200,
    0x280001040802101, 0x2100190040002085, 0x80c0084100102001, 0x4024081001000421,
    0x20030a0244872, 0x12001008414402, 0x2006104900a0804, 0x1004081002402,
)

BISHOP_MAGICS = (
    0x40040822862081, 0x40810a4108000, 0x2008008400920040, 0x61050104000008,
    0x8282021010016100, 0x41008210400a0001, 0x3004202104050c0, 0x22010108410402,
    0x60400862888605, 0x6311401040228, 0x80801082000, 0x802a082080240100,
    0x1860061210016800, 0x401016010a810, 0x1000060545201005, 0x21000c2098280819,
    0x2020004242020200, 0x4102100490040101, 0x114012208001500, 0x108000682004460,
    0x7809000490401000, 0x420b001601052912, 0x408c8206100300, 0x2231001041180110,
    0x8010102008a02100, 0x204201004080084, 0x410500058008811, 0x480a040008010820,
    0x2194082044002002, 0x2008a20001004200, 0x40908041041004, 0x881002200540404,
    0x4001082002082101, 0x8110408880880, 0x8000404040080200, 0x200020082180080,
    0x1184440400114100, 0xc220008020110412, 0x4088084040090100, 0x8822104100121080,
    0x100111884008200a, 0x2844040288820200, 0x90901088003010, 0x1000a218000400,
    0x1102010420204, 0x8414a3483000200, 0x6410849901420400, 0x201080200901040,
    0x204880808050002, 0x1001008201210000, 0x16a6300a890040a, 0x8049000441108600,
    0x2212002060410044, 0x100086308020020, 0x484241408020421, 0x105084028429c085,
    0x4282480801080c, 0x81c098488088240, 0x1400000090480820, 0x4444000030208810,
    0x1020142010820200, 0x2234802004018200, 0xc2040450820a00, 0x2101021090020,
)
