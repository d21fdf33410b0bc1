"""هستهٔ خالص (بدون I/O و logging) موتور تطبیق حساب‌ها."""
