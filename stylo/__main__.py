from stylo.cli import main

raise SystemExit(main())
