"""Attribution sentence templates.

``{brand_link}`` and ``{category_link}`` are filled with ready-made
markdown links, so every sentence carries exactly one link.
"""

HOME_TEMPLATES: tuple[str, ...] = (
    "Cập nhật thêm nhiều tin tức mới nhất mỗi ngày tại {brand_link}.",
    "Bạn đọc có thể theo dõi thêm các bài phân tích chuyên sâu trên {brand_link}.",
    "Nội dung được {brand_link} tổng hợp và biên tập từ nhiều nguồn đáng tin cậy.",
    "Đừng bỏ lỡ những diễn biến tiếp theo được cập nhật liên tục trên {brand_link}.",
    "Theo dõi {brand_link} để nắm bắt nhanh những thông tin đáng chú ý.",
)

CATEGORY_TEMPLATES: tuple[str, ...] = (
    "Khám phá thêm nhiều bài viết cùng chủ đề trong chuyên mục {category_link}.",
    "Những tin tức liên quan được cập nhật thường xuyên tại mục {category_link}.",
    "Quan tâm đến lĩnh vực này? Ghé chuyên mục {category_link} để đọc thêm.",
    "Các bài phân tích khác về chủ đề này có trong chuyên mục {category_link}.",
)
