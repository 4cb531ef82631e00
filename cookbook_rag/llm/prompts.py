CONTEXT_HEADER = "=== THAM KHẢO CÁC CÔNG THỨC TƯƠNG TỰ ==="

CONTEXT_FOOTER = """=== YÊU CẦU ===
Dựa vào các công thức trên, tạo công thức MỚI và SÁNG TẠO với phong cách riêng.
Chỉ dùng các công thức tham khảo làm nguồn cảm hứng, không sao chép nguyên văn.
Đảm bảo có ít nhất 3 bước chi tiết."""

REFERENCE_HEADING = "Công thức tham khảo {ordinal} (độ tương đồng: {similarity:.2f}):"

REFERENCE_TIMING = {
    "prepTime": "Chuẩn bị {value}",
    "cookTime": "Nấu {value}",
    "servings": "Phục vụ {value}",
}

REFERENCE_TIMING_PREFIX = "Thời gian: "
